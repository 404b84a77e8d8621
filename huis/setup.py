def run():
    """
    Run before every entry point:
        fastapi server
        alembic migrations
        tests
    """
    from loguru import logger

    from huis.common.logs import configure_logging

    configure_logging()
    configure_models()

    logger.info('application setup complete ✅')


def configure_models():
    """
    When using declarative we need to run this for our entry points
    to have every model registered on the metadata
    """
    from huis.common.model import import_model_modules

    import_model_modules()
