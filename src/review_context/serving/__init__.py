"""
Serving — FastAPI application for context upload, page scraping and
review analysis.
"""
