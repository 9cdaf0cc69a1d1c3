"""
Base settings for the msk_factory project.
Shared between local, production and test settings.
"""

from pathlib import Path
import os

from django.urls import reverse_lazy

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv('SECRET_KEY', 'django-insecure-q7!m2v#k0r$c9w&x@t3l^p8n+f5h(z*s1y6j_b4e=u)d-a')

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.getenv('DEBUG', 'True').lower() == 'true'

ALLOWED_HOSTS = os.getenv('ALLOWED_HOSTS', '*').split(',')


# Application definition
INSTALLED_APPS = [
    "unfold",
    "unfold.contrib.filters",
    "unfold.contrib.forms",
    "unfold.contrib.inlines",
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'main',
    'stock',
    'corsheaders',
    'rest_framework',
    'drf_spectacular',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'main.middleware.JSONErrorMiddleware',
]

ROOT_URLCONF = 'msk_factory.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'msk_factory.wsgi.application'


# Password validation (admin accounts only)
AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]


# Internationalization
LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.getenv('TIME_ZONE', 'Asia/Kolkata')
USE_I18N = True
USE_TZ = True


# Static files
STATIC_URL = 'static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'


# CORS
CORS_ALLOW_ALL_ORIGINS = True


# Default primary key field type
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# =============================================================================
# STOCK CONFIGURATION
# =============================================================================
# Numeric item codes are expanded to "<prefix>-<digits>"
STOCK_ITEM_CODE_PREFIX = os.getenv('STOCK_ITEM_CODE_PREFIX', 'MSK')

# Document numbers: prefix + zero-padded sequence (PROD-001, PUR001)
STOCK_DOCUMENT_NUMBERS = {
    'production_order': {'prefix': 'PROD-', 'width': 3},
    'purchase_entry': {'prefix': 'PUR', 'width': 3},
}

# Inventory summary is cached for this many seconds
STOCK_SUMMARY_CACHE_TIMEOUT = int(os.getenv('STOCK_SUMMARY_CACHE_TIMEOUT', '300'))


# Unfold Admin Configuration
UNFOLD = {
    "SITE_TITLE": "MSK Factory Admin",
    "SITE_HEADER": "MSK Factory",
    "SITE_URL": "/",
    "SITE_SYMBOL": "precision_manufacturing",

    "SIDEBAR": {
        "show_search": True,
        "show_all_applications": True,
        "navigation": [
            {
                "title": "Dashboard",
                "separator": False,
                "items": [
                    {
                        "title": "Dashboard",
                        "icon": "dashboard",
                        "link": reverse_lazy("admin:index"),
                    },
                ],
            },
            {
                "title": "Inventory",
                "separator": True,
                "items": [
                    {
                        "title": "Inventory Items",
                        "icon": "inventory_2",
                        "link": reverse_lazy("admin:stock_inventoryitem_changelist"),
                    },
                    {
                        "title": "Stock Transactions",
                        "icon": "receipt_long",
                        "link": reverse_lazy("admin:stock_stocktransaction_changelist"),
                    },
                    {
                        "title": "Purchases",
                        "icon": "shopping_cart",
                        "link": reverse_lazy("admin:stock_purchaseentry_changelist"),
                    },
                ],
            },
            {
                "title": "Production",
                "separator": True,
                "items": [
                    {
                        "title": "Recipes",
                        "icon": "menu_book",
                        "link": reverse_lazy("admin:stock_recipe_changelist"),
                    },
                    {
                        "title": "Production Orders",
                        "icon": "factory",
                        "link": reverse_lazy("admin:stock_productionorder_changelist"),
                    },
                ],
            },
            {
                "title": "Shop Floor",
                "separator": True,
                "items": [
                    {
                        "title": "Machines",
                        "icon": "precision_manufacturing",
                        "link": reverse_lazy("admin:main_machine_changelist"),
                    },
                    {
                        "title": "Operators",
                        "icon": "people",
                        "link": reverse_lazy("admin:main_operator_changelist"),
                    },
                    {
                        "title": "Machine Logs",
                        "icon": "history",
                        "link": reverse_lazy("admin:main_machinelog_changelist"),
                    },
                    {
                        "title": "Operator Entries",
                        "icon": "timer",
                        "link": reverse_lazy("admin:main_operatorentry_changelist"),
                    },
                ],
            },
        ],
    },
}

REST_FRAMEWORK = {
    'DEFAULT_SCHEMA_CLASS': 'drf_spectacular.openapi.AutoSchema',

    'DEFAULT_AUTHENTICATION_CLASSES': [],
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'UNAUTHENTICATED_USER': None,

    'DEFAULT_RENDERER_CLASSES': [
        'rest_framework.renderers.JSONRenderer',
    ],
    'DEFAULT_PARSER_CLASSES': [
        'rest_framework.parsers.JSONParser',
    ],
    'EXCEPTION_HANDLER': 'main.helpers.response.api_exception_handler',
}


SPECTACULAR_SETTINGS = {
    'TITLE': 'MSK Factory',
    'DESCRIPTION': 'Inventory, purchasing, production and shop floor API',
    'VERSION': '1.0.0',
}
