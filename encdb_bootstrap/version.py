"""EncDB Bootstrap Meta information.
   EncDB Bootstrap provisions a master encryption key and redirects existing
   connection pools to the encrypted database driver at startup.
"""
__title__ = 'encdb_bootstrap'
__description__ = (
   'Provision an EncDB master key and retrofit existing connection pools '
   'onto the encryption-aware driver.'
)
__version__ = '0.3.0'
__copyright__ = 'Copyright (c) 2025 Jesus Lara'
__author__ = 'Jesus Lara'
__author_email__ = 'jesuslarag@gmail.com'
__license__ = 'Apache-2.0'
__url__ = 'https://github.com/phenobarbital/encdb-bootstrap'
