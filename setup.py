#!/usr/bin/env python3
"""
Setup script for markupdeck - markup publishing build tool.
"""

from setuptools import setup, find_packages
import os

# Read the contents of README file
this_directory = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(this_directory, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

setup(
    name='markupdeck',
    version='1.0.0',
    description='Build tool for static markup publishing projects with a git-aware index page',
    long_description=long_description,
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={
        'markupdeck_pkg': [
            'templates/*.html',
        ],
    },
    include_package_data=True,
    install_requires=[
        'beautifulsoup4>=4.9',
        'csscompressor>=0.9.5',
        'Jinja2>=3.0',
        'Pillow>=9.0',
        'PyYAML>=6.0',
        'rjsmin>=1.2',
        'tzdata',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
            'pytest-cov>=4.0',
        ],
    },
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Internet :: WWW/HTTP :: Site Management',
        'Topic :: Software Development :: Build Tools',
        'Topic :: Text Processing :: Markup :: HTML',
    ],
    python_requires='>=3.9',
    entry_points={
        'console_scripts': [
            'markupdeck=markupdeck_pkg.cli:main',
        ],
    },
    keywords='markup, publishing, static site, sprites, jinja2, build',
)
