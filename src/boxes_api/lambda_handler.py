"""Lambda handler for the Boxes API using Mangum."""
from mangum import Mangum

from boxes_api.config.settings import configure_logging, get_settings
from boxes_api.main import create_app

settings = get_settings()
configure_logging(settings)

# Create FastAPI app
app = create_app(settings)

# Wrap with Mangum for Lambda compatibility
handler = Mangum(app, lifespan="off")
