#!/usr/bin/env python3
"""Run the tracker events API server."""

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "hls_tracker.api.events_api:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
    )
