# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Integration tests for the vb6_xref pipeline.

This package runs full actions (parse, resolve, name, plan, export, apply)
against small multi-module VB6 projects written to a temporary folder.
"""
