# !/usr/bin/python
# coding=utf-8
"""Render policy validation and root cause analysis."""
from __future__ import annotations
