"""
Run the API server:
    python -m boutique
"""

import uvicorn

from boutique.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "boutique.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=False,
    )
