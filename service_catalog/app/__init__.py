"""
Plant Catalog service application package.
"""
