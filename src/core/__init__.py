# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for the course service.

This package contains application-wide building blocks:
- config: Application configuration and settings
- container: Service wiring and process lifecycle
"""
