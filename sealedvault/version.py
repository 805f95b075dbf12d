"""SealedVault Meta information.
   SealedVault stores named secrets in an encrypted, authenticated file.
"""
__title__ = 'sealedvault'
__description__ = (
   'SealedVault stores named secrets in an encrypted, '
   'integrity-protected vault file.'
)
__version__ = '0.1.0'
__copyright__ = 'Copyright (c) 2026 SealedVault Developers'
__author__ = 'SealedVault Developers'
__author_email__ = ''
__license__ = 'Apache-2.0'
__url__ = ''  # placeholder until the project has a public home
