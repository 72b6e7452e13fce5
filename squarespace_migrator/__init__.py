"""
Top-level package for the Squarespace → WordPress blog migration utility.

This package bundles all components required to read a Squarespace
WordPress-format (WXR) export, import the referenced images into the
WordPress media library, rewrite internal links, convert post HTML to
WordPress block markup, create the posts over the REST API and write the
end-of-run reports.  Modules are split into subpackages:

* :mod:`squarespace_migrator.extractors` – reading posts and attachments from the XML export
* :mod:`squarespace_migrator.parsers` – link/asset rewriting and HTML to block conversion
* :mod:`squarespace_migrator.migrators` – asset import, media index and WordPress API interactions
* :mod:`squarespace_migrator.utils` – logging, error reports, term handling and report files

Each layer has no direct knowledge of configuration or execution
strategy; orchestration is handled in :mod:`squarespace_migrator.migration_tool`.
"""
