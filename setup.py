"""
Setup script for audit-conduct.

audit-conduct walks an auditor through a weighted yes/no/partial checklist
for a store department, scores the result, and keeps progress safe across
interruptions:

1. Resume - an unfinished audit picks up at the first unanswered question
2. Autosave - answers are written in the background after a short pause
3. Skip review - unanswered questions can be reviewed before submitting

The 'audit' command is the entry point.
"""

from setuptools import find_namespace_packages, setup

setup(
    name="audit-conduct",
    version="1.0.0",
    description="Terminal audit conduct engine for weighted store department checklists",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    packages=find_namespace_packages(include=["src", "src.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
        "postgres": [
            "psycopg2-binary>=2.9.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "audit=src.cli.audit_cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Office/Business",
    ],
    keywords="audit checklist retail compliance cli",
)
