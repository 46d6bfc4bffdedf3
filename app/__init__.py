"""Network listener and HTTP service"""
