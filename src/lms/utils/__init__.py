"""
Storage, spreadsheet, config and time helpers
"""
