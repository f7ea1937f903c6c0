"""
PT Rewards Backend - Firebase Cloud Functions entry point

Wraps the Flask API as an HTTPS function; run directly for local development
"""

from firebase_functions import https_fn, options

from ptrewards.app import create_app

app = create_app()

# Firebase Cloud Function wrapper
@https_fn.on_request(
    cors=options.CorsOptions(
        cors_origins=app.config['CORS_ORIGINS'],
        cors_methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"]
    )
)
def api(req):
    """Main Cloud Function entry point"""
    with app.request_context(req.environ):
        return app.full_dispatch_request()

# For local development
if __name__ == '__main__':
    app.run(debug=True, host='0.0.0.0', port=8080)
