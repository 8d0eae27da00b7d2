"""Order lifecycle and inventory reservation service"""
