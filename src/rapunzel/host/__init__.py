"""The helper process: owned context and the request/response loop."""
