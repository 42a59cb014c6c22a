"""
Celery instance for the background prefetch and cache sweep jobs, bound to
the Flask application context.
"""
from celery import Celery

# Broker and backend come from the Flask config in init_celery.
celery = Celery(__name__)


def init_celery(app):
    """
    Configures the shared Celery instance from the Flask app's config and makes
    every task run inside an application context.

    Args:
        app (Flask): The configured Flask application instance.

    Returns:
        Celery: The configured Celery instance.
    """
    celery.conf.update(
        broker_url=app.config['CELERY_BROKER_URL'],
        result_backend=app.config['CELERY_RESULT_BACKEND'],
        task_always_eager=app.config.get('CELERY_TASK_ALWAYS_EAGER', False),
    )

    class ContextTask(celery.Task):
        def __call__(self, *args, **kwargs):
            with app.app_context():
                return self.run(*args, **kwargs)

    celery.Task = ContextTask
    return celery
