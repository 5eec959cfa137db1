# !/usr/bin/python
# coding=utf-8
"""Integrity passes: diagnose, plan repairs, verify.

Lazy-loaded via the matdoctk root package; import the classes from there.
"""
