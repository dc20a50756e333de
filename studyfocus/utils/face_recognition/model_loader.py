import torch
import logging
from facenet_pytorch import MTCNN, InceptionResnetV1

log = logging.getLogger(__name__)


class FaceModelLoader:
    """Lazily builds the detector and embedding networks on first use."""

    def __init__(self, device: str = 'cpu', image_size: int = 160, margin: int = 40,
                 pretrained: str = 'vggface2'):
        self.device = torch.device(device)
        self.image_size = image_size
        self.margin = margin
        self.pretrained = pretrained
        self._mtcnn = None
        self._resnet = None

    @property
    def mtcnn(self) -> MTCNN:
        if self._mtcnn is None:
            log.info(f"Loading MTCNN on {self.device}...")
            # keep_all so the extractor can pick the most confident face itself
            self._mtcnn = MTCNN(
                keep_all=True, image_size=self.image_size, margin=self.margin,
                device=self.device, post_process=False
            )
        return self._mtcnn

    @property
    def resnet(self) -> InceptionResnetV1:
        if self._resnet is None:
            log.info(f"Loading InceptionResnetV1 ({self.pretrained})...")
            self._resnet = InceptionResnetV1(pretrained=self.pretrained).eval().to(self.device)
            for p in self._resnet.parameters():
                p.requires_grad = False
        return self._resnet
