#!/usr/bin/env python3
# -*- encoding: utf-8 -*-
# File: kymavcs/__init__.py
"""Decode Kyma /vcs OSC notifications with Python3.
"""

__version__ = "0.1.15"

__all__ = []
