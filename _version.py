#!/usr/bin/env python
# Copyright (c) Meta, Inc. and its affiliates.

__version__ = "0.2.0"
