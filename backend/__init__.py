"""Tenzin notifications backend"""
