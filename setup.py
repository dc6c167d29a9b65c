"""Setup for StudySession.

Install for development:
    pip install -e ".[test]"

Build a macOS .app bundle:
    pip install py2app
    python setup.py py2app
"""

import sys

from setuptools import find_packages, setup

APP = ["main.py"]
DATA_FILES = []
OPTIONS = {
    "argv_emulation": False,
    "iconfile": None,
    "plist": {
        "CFBundleName": "StudySession",
        "CFBundleDisplayName": "StudySession",
        "CFBundleIdentifier": "com.studysession.app",
        "CFBundleVersion": "0.1.0",
        "CFBundleShortVersionString": "0.1.0",
        "NSHighResolutionCapable": True,
        "LSMinimumSystemVersion": "13.0",
    },
}

# Only pull in py2app when actually building the bundle
app_kwargs = {}
if "py2app" in sys.argv:
    app_kwargs = dict(
        app=APP,
        data_files=DATA_FILES,
        options={"py2app": OPTIONS},
        setup_requires=["py2app"],
    )

setup(
    name="StudySession",
    version="0.1.0",
    description="Phase-sequenced study timer with focus and break phases",
    packages=find_packages(exclude=["tests"]),
    python_requires=">=3.10",
    install_requires=[
        "PyQt6>=6.5",
        "SQLAlchemy>=2.0",
        "numpy>=1.24",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": ["studysession=studysession.__main__:main"],
    },
    **app_kwargs,
)
