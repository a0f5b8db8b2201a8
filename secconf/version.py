"""secconf Meta information.
   secconf stores configuration secrets in a key-value service,
   encrypted with OpenPGP for a selected set of recipients.
"""
__title__ = 'secconf'
__description__ = (
   'Store OpenPGP-encrypted configuration secrets '
   'in Consul or etcd.'
)
__version__ = '0.3.0'
__license__ = 'Apache-2.0'
