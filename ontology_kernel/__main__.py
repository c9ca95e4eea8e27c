"""Run the Ontology Kernel API with uvicorn."""

import uvicorn

from ontology_kernel.api.app import create_app
from ontology_kernel.config import get_settings
from ontology_kernel.logging_config import configure_logging


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = create_app(settings=settings)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
