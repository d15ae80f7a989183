"""Utility helpers for the Repository Health Checker."""
