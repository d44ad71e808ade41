from .loss import get_loss, softmax_cross_entropy_with_logits, sparse_softmax_cross_entropy_with_logits, sigmoid_cross_entropy_with_logits, mse, mae, get_huber
