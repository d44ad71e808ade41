from enum import Enum
from functools import reduce


class ConvPadding(Enum):
    """Padding methods of the convolution and pooling layers"""
    SAME = "SAME"
    VALID = "VALID"
    FULL = "FULL"

    @property
    def padding_name(self):
        return self.value

    def lax_padding(self, kernel_size, dilations=None):
        """
        Converts the padding into something lax.conv_general_dilated and lax.reduce_window accept.\n
        kernel_size: the spatial window sizes, dilations: matching dilation rates.\n
        FULL has no lax name, so it is expanded to explicit (low, high) pairs.
        """
        if self is not ConvPadding.FULL:
            return self.value
        if dilations is None:
            dilations = [1] * len(kernel_size)
        pads = []
        for k, d in zip(kernel_size, dilations):
            k_eff = dilated_filter_size(k, d)
            pads.append((k_eff - 1, k_eff - 1))
        return pads


def get_padding(padding):
    if isinstance(padding, ConvPadding):
        return padding
    try:
        return ConvPadding(str(padding).upper())
    except ValueError:
        raise ValueError(f"Padding {padding} not found, use one of {[p.value for p in ConvPadding]}") from None


def dilated_filter_size(filter_size, dilation=1):
    return filter_size + (filter_size - 1) * (dilation - 1)


def conv_output_length(input_length, filter_size, padding, stride, dilation=1):
    """
    Output length of a convolution or pooling along one spatial dimension.\n
    Input: input_length (None if unknown), filter_size, padding (ConvPadding), stride, dilation\n
    Returns: the output length (None if input_length is None)
    """
    if input_length is None:
        return None
    padding = get_padding(padding)
    dilated = dilated_filter_size(filter_size, dilation)
    if padding is ConvPadding.SAME:
        output_length = input_length
    elif padding is ConvPadding.VALID:
        output_length = input_length - dilated + 1
    else:
        output_length = input_length + dilated - 1
    # ceiling division
    return (output_length + stride - 1) // stride


def num_elements(shape):
    """Number of elements in a tensor of the given shape (1 for scalars)"""
    if any(dim is None for dim in shape):
        raise ValueError(f"Can't count the elements of the partially known shape {tuple(shape)}")
    return int(reduce(lambda a, b: a * b, shape, 1))


def shape_from_dims(*dims):
    return tuple(int(d) for d in dims)


def shape_to_str(shape):
    return "(" + ", ".join("None" if d is None else str(d) for d in shape) + ")"


def require_array_size(array, size, name):
    if len(array) != size:
        raise ValueError(f"{name} is expected to have size equal {size} but got {len(array)}")
