"""HTTP routers for the document QA service."""
