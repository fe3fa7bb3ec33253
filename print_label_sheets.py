#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Print textile label records onto PDF label sheets.
"""

import textile_labels.cli


if __name__ == "__main__":
	textile_labels.cli.main()
