""" visgrid: convolutional gridding of interferometric visibilities with W projection

"""
__all__ = ['data_models', 'processing_components', 'workflows']
