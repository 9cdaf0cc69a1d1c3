# msk_factory/settings/__init__.py

import os

settings_module = os.getenv('DJANGO_SETTINGS_MODULE', 'msk_factory.settings')

# Only resolve an environment when the bare package is used as the settings
# module; explicit modules (msk_factory.settings.test, ...) load themselves.
if settings_module == 'msk_factory.settings':
    if os.getenv('DJANGO_ENV', 'local').lower() == 'production':
        from .production import *
    else:
        from .local import *
