"""
Development server: `python -m blog_api`.
Under a WSGI server point at the factory instead, e.g. `gunicorn "blog_api:create_app()"`.
"""
import os
from . import create_app

app = create_app()  # config picked from APP_ENV

if __name__ == "__main__":
    port = int(os.getenv("FLASK_RUN_PORT") or os.getenv("PORT", "5000"))
    app.run(
        host=os.getenv("FLASK_RUN_HOST", "127.0.0.1"),
        port=port,
        debug=app.config.get("DEBUG", False),
    )
