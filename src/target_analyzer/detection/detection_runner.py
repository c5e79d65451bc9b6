#!/usr/bin/env python3
"""
Detection Runner
Runs hole detection off the request thread. A newer request supersedes an
older one: results from a superseded generation are dropped by the analyzer.
"""

import threading
import traceback


class DetectionRunner:
    """Hands images to a detector and feeds results back into an analyzer"""

    def __init__(self, analyzer, detector):
        self.analyzer = analyzer
        self.detector = detector
        self.thread = None

    def run(self, image) -> int:
        """Detect synchronously; returns the generation used"""
        generation = self.analyzer.begin_detection()
        self._detect(generation, image)
        return generation

    def submit(self, image) -> int:
        """Detect on a background thread; returns the generation used"""
        generation = self.analyzer.begin_detection()
        self.thread = threading.Thread(target=self._detect, args=(generation, image), daemon=True)
        self.thread.start()
        return generation

    def wait(self, timeout=None) -> bool:
        """Wait for the latest background detection, True if it finished"""
        thread = self.thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def _detect(self, generation, image):
        try:
            holes = self.detector.detect(image)
        except Exception as e:
            print(f"ERROR: Hole detection failed: {e}")
            traceback.print_exc()
            self.analyzer.fail_detection(generation, e)
            return

        if self.analyzer.complete_detection(generation, holes):
            print(f"Detected {len(holes)} potential holes (generation {generation})")
        else:
            print(f"Discarded stale detection result (generation {generation})")
