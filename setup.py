#!/bin/env python
# -*- coding: utf-8 -*-

from setuptools import setup
import io

setup(
    name='kymavcs',
    version='0.1.15',
    description='Python3 decoder for Kyma /vcs Open Sound Control (OSC) '
                'value change notifications.',
    packages=['kymavcs', 'kymavcs.tests', 'kymavcs.demos'],
    keywords=['communication', 'sound', "network", "osc", "kyma"],
    license='CEA CNRS Inria Logiciel Libre License, version 2.1 (CeCILL-2.1)',
    python_requires='>=3.6',
    extras_require={
        'tests': ['pytest'],
        },
    classifiers=[
                'Development Status :: 4 - Beta',
                'Intended Audience :: Developers',
                'Natural Language :: English',
                'Operating System :: OS Independent',
                'Programming Language :: Python :: 3',
                'License :: OSI Approved :: CEA CNRS Inria Logiciel Libre License, version 2.1 (CeCILL-2.1)',
                'Topic :: Software Development :: Libraries :: Python Modules',
                'Topic :: Multimedia :: Sound/Audio',
             ],
    long_description=io.open("README.txt", encoding='utf-8').read(),
    )
