from prometheus_fastapi_instrumentator import Instrumentator

from sessionguard import create_app
from sessionguard.core.config import settings
from sessionguard.core.logging import setup_logging

setup_logging(settings.LOG_LEVEL)
app = create_app(settings)
instrumentator = Instrumentator()
instrumentator.instrument(app).expose(app)
