# !/usr/bin/python
# coding=utf-8
"""Repair planning and patch application."""
from __future__ import annotations
