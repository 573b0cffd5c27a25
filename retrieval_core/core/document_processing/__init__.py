"""
Document processing: text extraction and chunking.
"""
