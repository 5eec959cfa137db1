# !/usr/bin/python
# coding=utf-8
"""Name rules, classification, render policies and asset matching.

Lazy-loaded via the matdoctk root package; import the classes from there.
"""
