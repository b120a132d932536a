"""
Minimal Django settings for running the Consignman test suite.
"""

SECRET_KEY = 'consignman-tests'

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'consignman',
]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

USE_TZ = True
TIME_ZONE = 'UTC'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

CONSIGNMAN = {
    'CATALOG_BACKEND': 'consignman.adapters.records.StockRecordCatalog',
    'MAX_UPDATE_RETRIES': 3,
    'ORDER_NUMBER_START': 1001,
}
