"""Thinkify command line client: session, route guards and API access"""
