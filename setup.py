#!/usr/bin/env python3
"""
Setup script for AESC Client

This script handles the installation and distribution of the AESC Client package.
It provides command-line entry points and handles all dependencies automatically.

Usage:
    pip install -e .                    # Install in development mode
    pip install .                       # Install normally
    python setup.py sdist bdist_wheel    # Build distribution packages
"""

import sys
from pathlib import Path
from setuptools import setup, find_packages

# Ensure we're running on Python 3.8+
if sys.version_info < (3, 8):
    sys.exit("ERROR: Python 3.8 or higher is required")

# Get the directory containing this script
here = Path(__file__).parent.absolute()

# Read the README file for long description
def read_readme():
    """Read and return the contents of README.md"""
    readme_path = here / "README.md"
    if readme_path.exists():
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "Download judge problem statements as clean fixed-width text."

# Read requirements from requirements.txt
def read_requirements():
    """Read and return the list of requirements from requirements.txt"""
    requirements_path = here / "requirements.txt"
    requirements = []

    if requirements_path.exists():
        with open(requirements_path, 'r', encoding='utf-8') as f:
            for line in f:
                line = line.strip()
                # Skip empty lines and comments
                if line and not line.startswith('#'):
                    requirements.append(line)

    return requirements

# Get version from main module
def get_version():
    """Extract version from the main module"""
    version_file = here / "main.py"
    if version_file.exists():
        with open(version_file, 'r', encoding='utf-8') as f:
            for line in f:
                if line.strip().startswith('__version__'):
                    return line.split('=')[1].strip().strip('"').strip("'")
    return "1.0.0"

# Package metadata
PACKAGE_NAME = "aesc-client"
PACKAGE_VERSION = get_version()
PACKAGE_DESCRIPTION = "Download judge problem statements as clean fixed-width text"
PACKAGE_LONG_DESCRIPTION = read_readme()
AUTHOR_NAME = "AESC Client Team"

# Package requirements
INSTALL_REQUIRES = read_requirements()

# Development dependencies
EXTRAS_REQUIRE = {
    'dev': [
        'pytest>=7.0.0',
        'pytest-cov>=4.0.0',
        'flake8>=5.0.0',
        'black>=22.0.0',
        'mypy>=1.0.0',
        'isort>=5.10.0',
    ],
    'test': [
        'pytest>=7.0.0',
        'pytest-cov>=4.0.0',
        'pytest-mock>=3.8.0',
        'responses>=0.21.0',
    ]
}

# All extra dependencies combined
EXTRAS_REQUIRE['all'] = sorted({
    dep for deps in EXTRAS_REQUIRE.values() for dep in deps
})

# Entry points for command-line usage
ENTRY_POINTS = {
    'console_scripts': [
        'aesc-client=main:main',
        'aesc=main:main',
    ],
}

# Classifiers for PyPI
CLASSIFIERS = [
    'Development Status :: 4 - Beta',
    'Intended Audience :: Education',
    'License :: OSI Approved :: MIT License',
    'Operating System :: OS Independent',
    'Programming Language :: Python :: 3',
    'Programming Language :: Python :: 3.8',
    'Programming Language :: Python :: 3.9',
    'Programming Language :: Python :: 3.10',
    'Programming Language :: Python :: 3.11',
    'Programming Language :: Python :: 3.12',
    'Topic :: Education',
    'Topic :: Text Processing :: Markup :: HTML',
    'Topic :: Utilities',
]

# Keywords for PyPI search
KEYWORDS = [
    'competitive-programming',
    'online-judge',
    'web-scraping',
    'html-to-text',
    'educational-tools'
]

def main():
    """Main setup function"""

    # Verify that all required files exist
    required_files = ['main.py', 'requirements.txt', 'README.md']
    missing_files = [f for f in required_files if not (here / f).exists()]

    if missing_files:
        print(f"ERROR: Missing required files: {missing_files}")
        sys.exit(1)

    setup(
        # Basic package information
        name=PACKAGE_NAME,
        version=PACKAGE_VERSION,
        description=PACKAGE_DESCRIPTION,
        long_description=PACKAGE_LONG_DESCRIPTION,
        long_description_content_type='text/markdown',

        # Author information
        author=AUTHOR_NAME,

        # Package discovery
        packages=find_packages(exclude=['tests*', 'docs*']),
        py_modules=['main'],

        # Python version requirement
        python_requires='>=3.8',

        # Dependencies
        install_requires=INSTALL_REQUIRES,
        extras_require=EXTRAS_REQUIRE,

        # Entry points
        entry_points=ENTRY_POINTS,

        # PyPI metadata
        classifiers=CLASSIFIERS,
        keywords=' '.join(KEYWORDS),

        zip_safe=False,
        platforms=['any'],
        license='MIT',
    )

if __name__ == '__main__':
    main()
