from __future__ import annotations

import sys
from pathlib import Path

from setuptools import find_namespace_packages, setup

APP = ["src/quota_menubar/app.py"]
RESOURCES_DIR = Path("src/quota_menubar/assets")

VERSION = "0.1.0"

OPTIONS = {
    "argv_emulation": False,
    "packages": ["requests", "rumps"],
    "plist": {
        "LSUIElement": False,
        "CFBundleName": "Quota Menubar",
        "CFBundleIdentifier": "com.quota-menubar.app",
        "CFBundleShortVersionString": VERSION,
        "CFBundleVersion": VERSION,
    },
    "resources": [str(RESOURCES_DIR)] if RESOURCES_DIR.exists() else [],
}

app_build = {}
if "py2app" in sys.argv:  # pragma: no cover - used only during app builds
    app_build = {
        "app": APP,
        "options": {"py2app": OPTIONS},
        "setup_requires": ["py2app>=0.28"],
    }

setup(
    name="quota-menubar",
    version=VERSION,
    description="Menu-bar panel for Claude and Codex quota usage",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["quota_menubar*"]),
    python_requires=">=3.9",
    install_requires=[
        "requests>=2.28",
        "rumps>=0.4; sys_platform == 'darwin'",
        "pyobjc-core>=9.0; sys_platform == 'darwin'",
        "pyobjc-framework-Cocoa>=9.0; sys_platform == 'darwin'",
    ],
    extras_require={"test": ["pytest>=7.0"]},
    entry_points={"console_scripts": ["quota-menubar = quota_menubar.app:main"]},
    **app_build,
)
