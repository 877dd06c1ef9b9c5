#!/usr/bin/env python3
# -*- encoding: utf-8 -*-
# File: kymavcs/demos/demoslogger.py
# <pep8 compliant>

import logging

# A logger to monitor activity... and debug.
logging.basicConfig(format='%(asctime)s - %(name)s - '
    '%(levelname)s - %(message)s')
logger = logging.getLogger("vcs")
logger.setLevel(logging.DEBUG)
