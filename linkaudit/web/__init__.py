"""The Linkaudit web API"""
