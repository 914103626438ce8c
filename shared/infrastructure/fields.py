"""
Custom Django model fields for sensitive data.

EncryptedTextField transparently encrypts values before they are written
to the database and decrypts them when rows are loaded.
"""

import logging

from django.db import models

from .encryption import InvalidToken, decrypt_string, encrypt_string

logger = logging.getLogger(__name__)


class EncryptedTextField(models.TextField):
    """
    Text column holding a Fernet token.

    Encrypted values cannot be filtered on; the field is excluded from lookups
    other than isnull by convention.
    """

    description = "Encrypted text field"

    def from_db_value(self, value, expression, connection):
        if value is None or value == '':
            return value
        try:
            return decrypt_string(value)
        except InvalidToken:
            logger.error(f"Could not decrypt {self.model.__name__}.{self.name}; was ENCRYPTION_KEY rotated?")
            raise

    def get_prep_value(self, value):
        if value is None or value == '':
            return ''
        return encrypt_string(str(value))

    def to_python(self, value):
        if value is None:
            return value
        return str(value)
