import uvicorn

from nif_lookup.core.app_factory import create_app
from nif_lookup.core.config import settings

app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=settings.app.host, port=settings.app.port, log_config=None)
