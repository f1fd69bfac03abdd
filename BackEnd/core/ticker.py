from PySide6.QtCore import QObject, Signal, QTimer

class Ticker(QObject):
	"""1 Hz heartbeat that drives display refreshes. Never touches storage."""
	ticked = Signal()

	def __init__(self, interval_ms=1000, parent=None):
		super().__init__(parent)
		self._timer = QTimer(self)
		self._timer.setInterval(interval_ms)
		self._timer.timeout.connect(self.ticked.emit)

	def start(self):
		if not self._timer.isActive():
			self._timer.start()

	def stop(self):
		self._timer.stop()

	def is_active(self):
		return self._timer.isActive()

	def interval(self):
		return self._timer.interval()
