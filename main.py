# main.py
import uvicorn

from foodstore.api import create_app
from foodstore.core.config import Settings

settings = Settings()
app = create_app(settings)

if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=True)
