"""Network transport for talking to a RESP server."""
