"""This module serves as the initialization file for the core package of the resume reviewer application.

It groups configuration, token handling, and the authentication gate.

Notes:
    1. The core functionality is organized in submodules within the core directory.
    2. This file does not perform any operations and is used solely for package initialization.

"""
