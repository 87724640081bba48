# -*- coding: utf-8 -*-
########################
# errors.py
########################
# Purpose:
# - Exception types that cross the gameplay core boundary.
#
# Design notes:
# - Only audio capture acquisition failures are surfaced as exceptions.
# - Missing pitch, low confidence and malformed note names are normal outcomes (None / False), not errors.
#
########################


class PitchlaneError(Exception):
    """Base class for errors raised by the game core."""


class CapturePermissionError(PitchlaneError):
    """The audio capture device could not be opened or access was denied."""
