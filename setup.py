"""
Setup script for the Aadhaar QR Extractor.

This script configures the package for installation via pip.
Supports both development and production installations.
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the README for long description
this_directory = Path(__file__).parent
long_description = (this_directory / "README.md").read_text(encoding='utf-8')

setup(
    name="aadhaar-qr-extractor",
    version="1.0.0",
    description="Extract identity details from the QR code of password protected Aadhaar PDFs",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Aadhaar QR Extractor Contributors",
    author_email="",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pypdf[crypto]>=3.9.0",
        "Pillow>=9.1.0",
        "pyzbar>=0.1.9",
        "PyMuPDF>=1.22.0",
        "pdf2image>=1.16.0",
        "click>=8.0.0",
        "rich>=13.0.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "qrcode>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "aadhaar-qr=aadhaar_qr.cli:cli",
        ],
    },
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Utilities",
        "Topic :: Multimedia :: Graphics :: Capture :: Scanners",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Operating System :: OS Independent",
        "Environment :: Console",
    ],
    keywords="aadhaar qr pdf extract identity pymupdf pdf2image ghostscript",
    license="MIT",
    include_package_data=True,
    zip_safe=False,
)
