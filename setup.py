"""Setup script for msgraph-appreg-tree package."""

from setuptools import setup, find_packages
import os

# Read the contents of README file
this_directory = os.path.abspath(os.path.dirname(__file__))
readme_path = os.path.join(this_directory, "README.md")

try:
    with open(readme_path, encoding="utf-8") as f:
        long_description = f.read()
except FileNotFoundError:
    long_description = (
        "A Python library that mirrors Azure AD application registrations as a "
        "lazily resolved tree backed by Microsoft Graph."
    )

setup(
    name="msgraph-appreg-tree",
    version="0.1.0",
    author="Your Name",
    author_email="your.email@example.com",
    description="Browse and edit Azure AD application registrations as a tree backed by Microsoft Graph",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/msgraph-appreg-tree",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    python_requires=">=3.9",
    install_requires=[
        "msgraph-sdk>=1.0.0",
        "azure-identity>=1.12.0",
        "azure-core>=1.26.0",
        "microsoft-kiota-abstractions>=1.0.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "black>=22.0.0",
            "flake8>=4.0.0",
            "mypy>=0.950",
        ]
    },
    keywords="microsoft graph api azure ad entra application registration async",
    project_urls={
        "Bug Reports": "https://github.com/yourusername/msgraph-appreg-tree/issues",
        "Source": "https://github.com/yourusername/msgraph-appreg-tree",
        "Documentation": "https://github.com/yourusername/msgraph-appreg-tree#readme",
    },
)
