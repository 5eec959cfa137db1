# !/usr/bin/python
# coding=utf-8
"""Rule configuration and the file-backed content store.

Lazy-loaded via the matdoctk root package; import the classes from there.
"""
