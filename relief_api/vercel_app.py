"""
Vercel-specific Flask application entry point.

Vercel expects the WSGI application to be named ``app``.
"""

from relief_api.app import create_app

app = create_app()

if __name__ == "__main__":
    # Local testing only; Vercel imports ``app`` directly
    app.run(debug=False, host="0.0.0.0", port=app.config['PORT'])
