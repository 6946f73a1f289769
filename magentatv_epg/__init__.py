"""MagentaTV EPG adapter"""
