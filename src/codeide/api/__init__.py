"""
Expose the FastAPI application instance.

Importing this module will create a FastAPI application and register
all routes.  Run the service with Uvicorn directly or via:

```sh
python -m codeide.api
```
"""

from .main import app

__all__ = ["app"]
