"""HTTP API - build the application with perfumery.api.app.create_app()."""
