import os

from app import DEFAULT_HOST, DEFAULT_PORT, app, feed_service

if __name__ == '__main__':
    host = os.getenv('HOST', DEFAULT_HOST)
    port = int(os.getenv('PORT', DEFAULT_PORT))
    debug = os.getenv('DEBUG', 'False').lower() == 'true'

    settings = feed_service.settings
    print(f"Starting feedstream on {host}:{port}")
    print("Configured sources:")
    for feed in settings.default_feeds:
        print(f"  rss: {feed}")
    print(f"  social: {settings.social_api_base} (query: {settings.social_query!r})")
    print(f"\nAccess URL: http://{host}:{port}/api/social/feed")

    app.run(host=host, port=port, debug=debug, threaded=True)
