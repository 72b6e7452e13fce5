"""
WordPress API migrators and helpers.

This subpackage provides the asset resolver and importer, the media store
they write to, and the functions that talk to the WordPress REST API for
creating posts, managing blog taxonomies and attaching featured images.
Rate limiting and automatic retries are handled in
:mod:`squarespace_migrator.migrators.wordpress_migrator`.
"""
