"""Command-line interface for the shooting incident report"""
