from .recorder import AVRecorder, FragmentSink, Recorder

__all__ = ["AVRecorder", "FragmentSink", "Recorder"]
