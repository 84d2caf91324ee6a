from .auth import SCOPES, load_service_account_credentials
from .client import GoogleSheetsClient, column_letter
from .formatter import COLUMNS, format_row

__all__ = ['SCOPES', 'load_service_account_credentials', 'GoogleSheetsClient', 'column_letter', 'COLUMNS', 'format_row']
