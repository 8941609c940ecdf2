"""UG Graph Backend - FastAPI surface and session state for the graph core."""
