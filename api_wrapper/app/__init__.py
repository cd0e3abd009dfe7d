"""
Printago API Wrapper application package.

See ``main.create_app`` for the application factory.
"""
