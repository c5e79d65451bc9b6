"""HTTP API for the target analyzer"""
