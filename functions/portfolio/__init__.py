"""
Portfolio site package.

A FastAPI application serving the public portfolio pages, account flows backed
by a hosted auth service, subscriptions and an admin console.
"""
