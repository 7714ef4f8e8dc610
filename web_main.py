"""
Entry point for the Chess Arena web API.

Development (hot-reload):
    python web_main.py      ← API on :8000
"""

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "chessarena.web.app:build_default_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
