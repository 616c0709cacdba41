# SPDX-License-Identifier: MIT
"""Core value objects, errors, logging and redaction helpers."""
