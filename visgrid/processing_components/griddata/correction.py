""" Correction of images for the gridding convolution function

Gridding with the convolution function multiplies the image by the transform of the function: the
anti-aliasing taper. The corrector holds that taper, evaluated on the image pixels from the zero-w
kernel taps, and removes it from dirty images or applies it to models before prediction.
"""

__all__ = ['ConvolutionFunctionCorrector']

import logging

import numpy

from visgrid.data_models.errors import DataShapeError
from visgrid.data_models.memory_data_models import ConvolutionFunctionCache, Image
from visgrid.processing_components.fourier_transforms import fft
from visgrid.processing_components.image.operations import copy_image

log = logging.getLogger('logger')


class ConvolutionFunctionCorrector:
    """ Image plane taper of a convolution function cache for images of ny x nx pixels

    Each of correct_convolution and apply_convolution is to be applied once per image.

    Degridding multiplies the model by the taper, so a model is pre-weighted for forward with
    correct_convolution (see Gridder.model_to_griddata). apply_convolution puts the taper back, for
    example to compare a corrected image with the uncorrected transform of a grid.
    """

    def __init__(self, cf: ConvolutionFunctionCache, ny, nx):
        self.ny = ny
        self.nx = nx
        oversample = cf.oversample
        kernel = numpy.real(cf.zero_w_kernel[oversample // 2, oversample // 2])
        support = kernel.shape[-1] // 2
        if 2 * support + 1 > min(ny, nx):
            raise DataShapeError("Kernel width %d is larger than the image %s" % (2 * support + 1, str((ny, nx))))
        placed = numpy.zeros([ny, nx])
        placed[ny // 2 - support:ny // 2 + support + 1, nx // 2 - support:nx // 2 + support + 1] = kernel
        self.taper = numpy.real(fft(placed))
        log.debug("ConvolutionFunctionCorrector: taper ranges from %g to %g"
                  % (numpy.min(self.taper), numpy.max(self.taper)))

    def _check_shape(self, im):
        if im.data.shape[-2:] != (self.ny, self.nx):
            raise DataShapeError("Image shape %s does not match the corrector %s"
                                 % (str(im.data.shape), str((self.ny, self.nx))))

    def correct_convolution(self, im: Image) -> Image:
        """ Divide an image by the taper, removing the effect of gridding

        Pixels where the taper is not positive are set to zero.

        :param im: Image
        :return: New Image
        """
        self._check_shape(im)
        newim = copy_image(im)
        inverse = numpy.zeros_like(self.taper)
        positive = self.taper > 0.0
        inverse[positive] = 1.0 / self.taper[positive]
        newim.data = newim.data * inverse
        return newim

    def apply_convolution(self, im: Image) -> Image:
        """ Multiply an image by the taper, the inverse of correct_convolution

        :param im: Image
        :return: New Image
        """
        self._check_shape(im)
        newim = copy_image(im)
        newim.data = newim.data * self.taper
        return newim
