"""Fleet delivery service"""
